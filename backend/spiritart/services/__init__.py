# Services package init
"""
SpiritArt Backend: Services Layer
==================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services receive their collaborators through FastAPI dependencies
       (see spiritart/dependencies.py) and raise SpiritArtError subclasses.

Service Inventory:
    - LedgerStore: users, image records and credit transactions
    - PaymentGateway / RazorpayGateway: provider order creation
    - PaymentService: create-order and verify-payment flows
    - VisionDescriber, ImageGenerator (abstract): AI provider contracts
    - OpenAIService: both AI contracts on the OpenAI API
    - UploadStorage (Disk / Memory): temporary originals
    - ImageTransformService: the upload-and-transform workflow
    - normalize_image, compose_prompt: pure helpers used by the workflow
"""
