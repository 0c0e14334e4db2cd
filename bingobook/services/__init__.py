"""
BingoBook Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database/image store.
How:   Services take an AsyncSession plus plain values, apply the rules,
       and raise BingoBookError subclasses on failure.

Service Inventory:
    - ImageStore:        image validation, storage on disk, deletion
    - EntryService:      submit/search/update/delete entries, add/delete images
    - TimesheetService:  list, current row, new row, sign in/out, update, delete
"""
