"""
General-purpose helpers not related to the client itself
(neither to the API calls nor to the resource structures).

Helpers do not depend on anything in the library. They are things that
would better be in the standard library or in the dependencies.
"""
