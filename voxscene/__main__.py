import sys

from voxscene.cli import main

sys.exit(main())
