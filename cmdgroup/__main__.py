"""
Main entry point for the cmdgroup package.
This file is executed when running the package as a module:
python -m cmdgroup
"""

from .main import main

if __name__ == "__main__":
    main()
