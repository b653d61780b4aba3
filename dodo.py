from doit.action import CmdAction


def task_format():
    """Format code using ruff."""

    def router(help=False):
        if help:
            return """echo '
Code Formatter Help
=================

This task runs the ruff formatter over the source, tests and scripts:
- Sorts imports (ruff check --select I --fix)
- Formats code (ruff format)

No options required - simply run:
  doit format
  '"""
        return "ruff check --select I --fix src tests scripts && ruff format src tests scripts"

    return {
        "actions": [CmdAction(router)],
        "params": [
            {
                "name": "help",
                "long": "help",
                "default": False,
                "type": bool,
            },
        ],
        "verbosity": 2,
    }


def task_test():
    """Run the test suite using pytest."""

    def router(keyword="", verbose=False):
        cmd = "pytest tests"
        if keyword:
            cmd += f" -k '{keyword}'"
        if verbose:
            cmd += " -v"
        return cmd

    return {
        "actions": [CmdAction(router)],
        "params": [
            {
                "name": "keyword",
                "short": "k",
                "long": "keyword",
                "default": "",
                "help": "Only run tests matching this pytest -k expression",
            },
            {
                "name": "verbose",
                "short": "v",
                "long": "verbose",
                "default": False,
                "type": bool,
            },
        ],
        "verbosity": 2,
    }
