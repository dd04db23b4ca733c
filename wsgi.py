#!/usr/bin/env python3
"""
WSGI Entry Point for the Target Group Provisioner Flask Application
"""

import os

from targetgroup import create_app

# Create the Flask application instance
app = create_app(os.getenv('FLASK_ENV', 'production'))

# Expose for gunicorn
application = app

if __name__ == '__main__':
    app.run()
