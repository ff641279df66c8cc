"""FocusGuard Core -- 任务生命周期状态机、存储与逾期扫描"""
