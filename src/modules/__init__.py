"""
Domain modules.

- shared: base service/repository patterns and domain exceptions
- whitelist: squad leader whitelist progress engine
"""
