import sys

from libs.vault_storage.cli import main

sys.exit(main())
