from uptime_monitor.main import main

raise SystemExit(main())
