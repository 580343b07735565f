"""
Customers module (JSON API under /api).

Scope:
- Customers CRUD with filter/search/sort/pagination on the list endpoint
- Addresses owned by a customer (add, list, update, delete)
- Deleting a customer removes its addresses through the FK cascade
"""
