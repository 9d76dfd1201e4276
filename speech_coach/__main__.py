"""Package entry point for ``python -m speech_coach``.

HOW: Delegates to the CLI's main() function.
"""

from speech_coach.cli import main

if __name__ == "__main__":
    main()
