"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (containers, tool types, ArcGIS fields)
- exceptions: Error taxonomy shared by every boundary operation
- ingress: HTTP request parsing and response building for function_app
"""
