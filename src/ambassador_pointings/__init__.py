"""Interactive admin client for Ambassador service pointings."""

__version__ = "0.1.0"
