"""
Module: wms_kernel.db.types
Responsibility: Column widths shared by the models and by the validation
    limits that must never exceed them.
Architecture position: Kernel > DB.  Imports nothing from the kernel.
"""

# Batch / lot labels.  InventoryConfig.label_max_length may lower this
# limit but never raise it.
TRACKING_LABEL_LENGTH = 100

SKU_LENGTH = 100
NAME_LENGTH = 255
BARCODE_LENGTH = 100

MOVEMENT_TYPE_LENGTH = 50
REFERENCE_TYPE_LENGTH = 100
REFERENCE_ID_LENGTH = 255
