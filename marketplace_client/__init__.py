from .api import APIError, MarketplaceAPI

__all__ = ['APIError', 'MarketplaceAPI']
