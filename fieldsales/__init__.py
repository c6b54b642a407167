"""
MS-FIELDSALES-PY - Dashboard de managers para equipos de ventas en campo
"""
