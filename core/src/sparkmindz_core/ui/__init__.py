"""Server-rendered pages.

Kept deliberately small:
- a public landing page and the admin login page
- the admin panel, which sits behind the session gate
- plain JS calling the JSON API for login and logout
"""
