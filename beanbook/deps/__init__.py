from .auth import AuthContext, require_account
from .resources import currency_converter, require_bean

__all__ = ["AuthContext", "currency_converter", "require_account", "require_bean"]
