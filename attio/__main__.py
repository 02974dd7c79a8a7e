"""
CLI entry point, when used as a module: `python -m attio`.
"""
from attio import cli

if __name__ == '__main__':
    cli.main()
