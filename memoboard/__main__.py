"""Allow running memoboard as: python -m memoboard"""

from .cli import main

if __name__ == "__main__":
    main()
