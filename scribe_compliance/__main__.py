"""Package entry point for ``python -m scribe_compliance``.

WHY: Users run the tool as ``python -m scribe_compliance analyze call.mp3``
without installing the console script.

HOW: Delegates to the CLI's main() function.
"""

from scribe_compliance.cli import main

if __name__ == "__main__":
    main()
