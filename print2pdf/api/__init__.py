"""print2pdf HTTP API.

FastAPI service exposing /status, /v1/print (S3 upload) and /v2/print
(streamed PDF) on top of the printing core.
"""
