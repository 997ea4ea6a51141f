"""Package entry point for ``python -m asm_explorer``.

WHY: Users run the explorer as ``python -m asm_explorer main.c --listing
main.asm`` without installing the console script.

HOW: Delegates to the CLI's main() function. ``--serve`` starts the HTTP
API instead.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from asm_explorer.server.app import run_api
        run_api()
    else:
        from asm_explorer.cli import main
        main()
