import sys

from localmr.client.client import main

sys.exit(main())
