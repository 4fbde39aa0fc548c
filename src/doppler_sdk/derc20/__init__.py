from .derc20 import Derc20Token

__all__ = ("Derc20Token",)
