"""
Services

Layout designer, layout serializer, form compiler and the module
configuration boundary.
"""
