from .deposit import Deposit

__all__ = ["Deposit"]
