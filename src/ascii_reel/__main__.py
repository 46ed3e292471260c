import sys

from ascii_reel.cli import main


sys.exit(main())
