import sys

from cbsim_probe.cli import main

sys.exit(main())
