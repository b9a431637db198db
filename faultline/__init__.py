from faultline.cluster import (
    Cluster as Cluster,
    Member as Member,
    MemberRole as MemberRole,
)
from faultline.env import (
    Env as Env,
    load_env as load_env,
)
