import os

# Settings require a bucket name; tests never talk to AWS.
os.environ.setdefault("AWS_S3_BUCKET_NAME", "test-bucket")
