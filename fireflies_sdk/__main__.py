"""Package entry point for ``python -m fireflies_sdk``.

Delegates to the CLI's main() function.
"""

from fireflies_sdk.cli import main

if __name__ == "__main__":
    main()
