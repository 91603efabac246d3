"""API layer: root router and shared dependencies.

Import the router from ``marketadmin.api.router``; this package stays free
of eager imports so feature modules can depend on ``api.dependencies``.
"""
