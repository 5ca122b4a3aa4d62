SERVICE_NAME = "link_worker"
