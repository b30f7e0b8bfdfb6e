cur_version = "1.0.0"
version_prefix = "/api"
