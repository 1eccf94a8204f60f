"""Check-in tracker package.

Organized by feature modules (students, users, logs, checkio) with a thin Flask
controller layer over service/repository layers and a generic record store.
"""
