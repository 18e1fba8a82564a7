from .subscription import Subscription
from .episode import Episode

__all__ = ["Subscription", "Episode"]
