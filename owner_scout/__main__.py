from owner_scout.worker import main

raise SystemExit(main())
