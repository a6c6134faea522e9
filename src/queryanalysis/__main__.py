import sys

from queryanalysis.cli import main


sys.exit(main())
