"""Poultry shop bookkeeping: stock, lots, cash on hand and customer dues."""

__version__ = "0.1.0"


def __getattr__(name):
    # cli.main registers every command module, so load it on first use only
    if name in ("cli", "main"):
        from flockbook.cli import main as cli_main

        return getattr(cli_main, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
