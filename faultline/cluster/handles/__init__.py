from faultline.cluster.handles.container_handle import (
    ContainerHandle as ContainerHandle,
)
from faultline.cluster.handles.docker_container_handle import (
    DockerContainerHandle as DockerContainerHandle,
)
from faultline.cluster.handles.log_channel import LogChannel as LogChannel
