"""
Task subsystem.

Components:
- task_models.py: data structures (Todo, Deadline, Event) and date parsing
- task_list.py: thread-safe ordered task collection
- task_store.py: plain-text task file
"""
