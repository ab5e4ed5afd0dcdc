"""
All the structures coming from/to the state manager API, and their identities.

Structures do not depend on the clients and do not perform any I/O:
they only describe, convert, and address the data.
"""
