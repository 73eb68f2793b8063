from mdkb.main import main

raise SystemExit(main())
