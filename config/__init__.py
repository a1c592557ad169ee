from .config import Config, config, parse_routes

__all__ = ['Config', 'config', 'parse_routes']
