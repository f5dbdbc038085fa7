"""
OneSim Backend: API Routes Package
==================================

Route inventory:
    - users.py:     GET  /api/students
                    POST /api/login
                    POST /api/signup
    - cases.py:     GET  /api/cases
                    POST /api/assign-case
                    GET  /api/student-assignments/{studentName}
                    POST /api/submit-answers
                    GET  /api/teacher-data
    - patients.py:  POST /api/patients
                    POST /register          (legacy path)
                    GET  /api/patients
    - relay.py:     POST /process
    - realtime.py:  WS   /ws  (alias /)
    - health.py:    GET  /health

Routes stay thin: extract the input, call a service, pick the status code.
"""
