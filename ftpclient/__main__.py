import sys

from ftpclient.entrypoint import main

sys.exit(main())
