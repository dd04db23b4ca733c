"""Flask extensions initialization.

Extensions are created here unconfigured and bound in the app factory.
"""

from apscheduler.schedulers.background import BackgroundScheduler

# APScheduler for background provisioning runs
scheduler = BackgroundScheduler()
