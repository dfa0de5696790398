"""
Web layer: conventional routing, controllers, Jinja2 views and the request pipeline.
"""
