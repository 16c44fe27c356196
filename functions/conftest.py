# Test environment: `main` registers a Cloud Storage trigger at import time,
# which needs a default bucket name from FIREBASE_CONFIG when unit testing.
import os

os.environ.setdefault(
    "FIREBASE_CONFIG",
    '{"projectId": "demo-project", "storageBucket": "demo-project.appspot.com"}',
)
