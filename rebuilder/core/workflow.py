from enum import Enum

class ImportStage(str, Enum):
    ACQUIRE_SOURCE = "ACQUIRE_SOURCE"
    ANALYZE_SOURCE = "ANALYZE_SOURCE"
    BUILD_PLAN = "BUILD_PLAN"
    REGENERATE = "REGENERATE"
    DONE = "DONE"
    FAILED = "FAILED"

PIPELINE_STAGES = [
    ImportStage.ACQUIRE_SOURCE,
    ImportStage.ANALYZE_SOURCE,
    ImportStage.BUILD_PLAN,
    ImportStage.REGENERATE,
]
