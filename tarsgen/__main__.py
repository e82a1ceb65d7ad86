from .orchestrator import main

main()
