"""
CLI entry point, when used as a module: `python -m statemgr`.

Useful for debugging in the IDEs (use the start-mode "Module", module "statemgr").
"""
from statemgr import cli

if __name__ == '__main__':
    cli.main()
