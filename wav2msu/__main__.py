"""Package entry point for ``python -m wav2msu``.

WHY: Users run the converter as ``python -m wav2msu track.wav -o track.pcm``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from wav2msu.cli import main

if __name__ == "__main__":
    main()
