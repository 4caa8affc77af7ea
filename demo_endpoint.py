"""
Run the InvoiceBill API locally with auto-reload.

Reads the same .env as the app; see backend/config.py for the variables.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting InvoiceBill Backend (development)")
    print("=" * 60)
    print()
    print("API Endpoints:")
    print("   - Health Check:  GET  http://localhost:3000/health")
    print("   - Invoices:      GET  http://localhost:3000/invoices")
    print("   - Quotations:    GET  http://localhost:3000/quotations")
    print("   - Messages:      GET  http://localhost:3000/messages")
    print("   - API Docs:           http://localhost:3000/docs")
    print()
    print("Authentication:")
    print("   Everything except /health, /auth/* and the payment")
    print("   redirect/callback pages requires:")
    print("   Authorization: Bearer <supabase access token>")
    print()
    print("Create an invoice with curl:")
    print('   curl -X POST "http://localhost:3000/invoices" \\')
    print('     -H "Authorization: Bearer $TOKEN" -H "Content-Type: application/json" \\')
    print('     -d \'{"number": "INV-1", "recipient_phone": "+91 98765 43210",')
    print('          "items": [{"name": "Design", "qty": 2, "rate": 100}]}\'')
    print()
    print("=" * 60)

    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,
        log_level="info"
    )
