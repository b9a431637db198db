from faultline.cluster.lifecycle.lifecycle_config import (
    LifecycleConfig as LifecycleConfig,
)
from faultline.cluster.lifecycle.lifecycle_engine import (
    LifecycleEngine as LifecycleEngine,
)
