"""HR timekeeping engine.

Feature modules (attendance, schedules, leaves, overtime, recovery, payroll)
keep their rules in service/repository layers; Flask controllers stay thin.
"""
