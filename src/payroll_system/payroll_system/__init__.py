"""Payroll System package.

This package is organized by feature modules (users, attendance, deductions,
payroll, ...) with a thin Flask controller layer and service/repository layers.
"""
