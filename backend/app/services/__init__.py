"""
HealthAPI Backend — Services Layer
====================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - CredentialStore:   user and refresh-token persistence helpers
    - TokenCodec:        signed access/refresh/confirmation tokens (PyJWT)
    - PasswordHasher:    bcrypt hashing and verification
    - Mailer + EmailTransport: confirmation and reset-code emails (SMTP or log)
    - AuthService:       the credential lifecycle
    - authorize():       bearer token → user, as a typed result
    - UserService / ProfileService / MeasurementService: account data CRUD

Services receive the request's AsyncSession per call and only flush; the
session dependency commits or rolls back the whole request.
"""
