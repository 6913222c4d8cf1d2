import sys

from foambench.cli import run_main

sys.exit(run_main())
