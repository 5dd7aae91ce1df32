"""
Domain Package
==============
Playlist schedule entities, interval arithmetic and validation rules.
Nothing in here touches Flask or the database.
"""
