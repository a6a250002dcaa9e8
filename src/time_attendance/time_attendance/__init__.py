"""Time & attendance clock engine.

Feature modules (rounding, shifts, timeclock, hours, payroll) keep business
rules in plain services over repository protocols; Flask and MySQL live at
the edges (``main.py``, ``*/controller.py``, ``mysql_*`` repositories).
"""
