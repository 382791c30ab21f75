import sys

from govdoc_ner.cli import main

sys.exit(main())
