"""Package entry point for ``python -m caption_pipeline``.

WHY: Users run the pipeline as ``python -m caption_pipeline lecture.mp4``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.
"""

from caption_pipeline.cli import main

if __name__ == "__main__":
    main()
