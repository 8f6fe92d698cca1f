"""Path sandboxing, disk usage, stat information and archive creation for a server directory."""