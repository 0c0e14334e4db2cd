"""
BingoBook Backend — API Routes Package
========================================

Route Inventory:
    - entries.py:     POST /submit-data, GET /get-data, POST /update-data,
                      POST /delete-data, POST /add-image, POST /delete-image
    - timesheets.py:  GET /timesheets/{entryId}, GET /timesheets/get-current-row/{entryId},
                      POST /timesheets/newRow|signIn|signOut|updateRow,
                      DELETE /timesheets/deleteRow
    - health.py:      GET /health

Routes stay thin: parse the request, call a service, shape the response.
"""
