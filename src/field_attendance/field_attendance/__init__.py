"""Field Attendance package.

Geometry helpers for field boundaries plus an attendance reconciliation
engine that turns GPS check-ins and RFID device scans into sessions. Feature
modules (geo, fields, workers, attendance, events) follow a thin Flask
controller layer over service/repository layers.
"""
