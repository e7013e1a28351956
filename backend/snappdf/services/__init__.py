"""
SnapPDF Backend - Services Layer
==================================

Service Inventory:
    - fingerprint:       SHA-256 batch-local duplicate filter
    - FileService:       files rows (record, list, status updates)
    - ObjectStorageService: S3 uploads and presigned links
    - JobQueueService:   OCR job messages on SQS
    - SessionTokenStore: bearer tokens in Redis
    - IdentityService:   Google authorization-code exchange
    - UserService:       users rows
    - IntakeService:     dedup → record → upload → announce

Services receive their clients through the constructor (see
snappdf.dependencies); none of them reads a global client.
"""
