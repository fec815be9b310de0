import sys

from av_control.cli.main import main

sys.exit(main())
