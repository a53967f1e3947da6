"""Spreadsheet-bound audit & attendance reporting jobs.

Three jobs share the workbook as their data source:

- flatten: wide audit form responses -> one row per filled audit group (watermarked)
- weekly-audit: last_audit snapshot -> pass/fail HTML mail, once per timestamp
- attendance: Attendance sheet -> one HTML (+CSV) mail per department
"""

__version__ = "0.3.0"
