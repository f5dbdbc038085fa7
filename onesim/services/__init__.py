"""
OneSim Backend: Services Layer
==============================

What:  Business logic between the routes (HTTP) and the database.

Service inventory:
    - UserService:              signup, login, student listing
    - CaseService:              cases, assignments, answers, teacher view
    - PatientService:           patient registration and listing
    - PasswordHasher:           bcrypt hash/verify off the event loop
    - NotificationBroadcaster:  WebSocket registry and Activity Event fan-out
    - FileRelay:                upload staging and hand-off to the
                                comparison service

The query services are stateless singletons that receive a session per
call. The other three hold process-wide resources and are built in the
application lifespan.
"""
