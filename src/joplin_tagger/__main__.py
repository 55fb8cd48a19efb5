import sys

from joplin_tagger.cli import main

sys.exit(main())
