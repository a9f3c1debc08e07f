from sideloader.web.api import create_api_router

__all__ = ['create_api_router']
