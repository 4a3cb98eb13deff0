"""CRUD operations package.

One module per table:
- execs.py: admins and managers
- teachers.py, students.py, classrooms.py
- attendance.py: daily attendance marks (upsert on student + date)

Every function takes the request's AsyncSession and flushes but never
commits; ``get_db`` owns the transaction.
"""
