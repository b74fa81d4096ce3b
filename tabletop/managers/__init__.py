"""
Entity managers: validation, uniqueness and reference checks around CRUD.
"""
